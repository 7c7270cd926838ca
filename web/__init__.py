"""HTTP adapter for the CHIP-8 virtual machine."""
