"""CragCrowd API: ingesta y consulta de lecturas de ocupación de muros."""

__version__ = "1.0.0"
