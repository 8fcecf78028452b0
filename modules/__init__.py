"""Device modules: adaptors, drivers and the LED robot."""
