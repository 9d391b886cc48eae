from .exporter import NO_EIP, MetricsExporter

__all__ = ["MetricsExporter", "NO_EIP"]
