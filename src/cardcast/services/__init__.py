"""Service layer: the payoff simulator, reports and their use cases."""
