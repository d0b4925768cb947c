"""Pure domain layer: value objects, the threshold guard, property codec, host ports."""
