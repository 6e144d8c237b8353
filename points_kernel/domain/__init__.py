"""Pure domain core: rules, value types and DTOs.  Zero I/O."""
