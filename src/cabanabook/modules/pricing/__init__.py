"""Season rules, nightly prices and stay breakdowns."""
