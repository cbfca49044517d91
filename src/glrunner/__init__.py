"""glrunner - GitLab CI runner registration client."""

__version__ = "0.3.0"
