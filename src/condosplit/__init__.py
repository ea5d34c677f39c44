"""Proportional allocation of condominium bills across units."""
