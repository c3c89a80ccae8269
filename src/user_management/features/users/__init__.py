"""Users feature: registration, login and logout."""
