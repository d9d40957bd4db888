"""Service layer: business rules over the relational store."""
