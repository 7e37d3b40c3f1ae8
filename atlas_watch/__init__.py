"""3I/ATLAS Watch: news aggregation, claim analysis and notifications for interstellar object 3I/ATLAS."""

__version__ = "1.0.0"
