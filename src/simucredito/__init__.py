"""simucredito — mortgage credit simulator (French method, TCEA, VAN, TIR, subsidies)."""

__version__ = "0.1.0"
