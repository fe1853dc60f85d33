"""Core domain: models, ports, rate arithmetic and the rate transform."""
