"""User interface components for the FM tuner."""

from .app import RadioApp
from .styles import RADIO_APP_CSS

__all__ = ['RadioApp', 'RADIO_APP_CSS']
