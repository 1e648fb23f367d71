"""Services package: quiz session lifecycle and progress aggregation."""
