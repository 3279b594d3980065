"""Pure domain layer: clock, DTOs, account tree and seed ordering."""
