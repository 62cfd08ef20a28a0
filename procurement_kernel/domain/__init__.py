"""Pure domain value objects. No I/O."""
