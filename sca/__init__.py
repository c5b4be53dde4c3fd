"""Shopping Competitor Analysis — compare shopping-ad performance against SERP competitors."""

__version__ = "0.1.0"
