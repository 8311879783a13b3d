"""Fix engine: strategies, orchestration and score estimation."""
