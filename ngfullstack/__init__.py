"""ngfullstack -- interactive AngularJS + Express project scaffolder."""

__version__ = "0.1.0"
