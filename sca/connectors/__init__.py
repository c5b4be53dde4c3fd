"""Live data-source connectors: SerpWow, Google Ads and Google Sheets."""
