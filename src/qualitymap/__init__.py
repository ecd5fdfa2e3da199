"""World map colored by the quality of each country's encyclopedia article."""

__version__ = "1.0.0"
