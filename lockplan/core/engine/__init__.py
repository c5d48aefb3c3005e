"""Planning engine: overrides, tree assembly, merge planning."""
