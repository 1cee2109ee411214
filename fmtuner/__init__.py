"""FM radio tuner with station presets."""

__version__ = "0.2.0"
