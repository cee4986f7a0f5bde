"""Domain layer for finstate: pure statement computation and the services around it."""
