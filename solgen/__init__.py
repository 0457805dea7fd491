"""solgen - Generate Visual Studio solutions from MSBuild project references."""

__version__ = "0.1.0"
__all__ = ["__version__"]
