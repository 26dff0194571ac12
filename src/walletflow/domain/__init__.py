"""Domain layer: polling, convergence policies and the login handshake."""
