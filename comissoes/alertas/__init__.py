from .avaliador_alertas import AvaliadorAlertas

__all__ = ["AvaliadorAlertas"]
