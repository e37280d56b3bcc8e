"""coinseries core: data access, reconciliation and aggregation."""
