"""Protocolos que implementan los adaptadores (hoy: el firmante de deploys)."""
