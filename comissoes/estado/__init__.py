"""
Armazenamento dos registos (tipos de artigo, clientes, vendas, pagamentos, alertas).
"""

from .repositorio import COLECOES, RepositorioRegistos

__all__ = ["COLECOES", "RepositorioRegistos"]
