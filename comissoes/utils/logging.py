"""
Módulo de logging e validação.
Contém a classe ValidationLogger para recolher mensagens de validação por campo
e a configuração do log em ficheiro partilhada pelo pacote.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Dict, List, Optional


FORMATO_LOG = "%(asctime)s | %(levelname)s | %(message)s"


def configurar_logging(
    ficheiro_log: Optional[str] = "comissoes.log",
    nivel: int = logging.INFO,
) -> logging.Logger:
    """
    Configura o logger do pacote `comissoes` com um ficheiro rotativo.

    Chamadas repetidas não duplicam handlers.

    Args:
        ficheiro_log: Caminho do ficheiro de log (None desativa o ficheiro)
        nivel: Nível mínimo de log

    Returns:
        Logger raiz do pacote
    """
    logger = logging.getLogger("comissoes")
    logger.setLevel(nivel)

    if ficheiro_log:
        caminho = os.path.abspath(ficheiro_log)
        tem_handler = any(
            isinstance(h, RotatingFileHandler) and getattr(h, "baseFilename", "") == caminho
            for h in logger.handlers
        )
        if not tem_handler:
            handler = RotatingFileHandler(
                ficheiro_log, maxBytes=1_000_000, backupCount=2, encoding="utf-8"
            )
            handler.setFormatter(logging.Formatter(FORMATO_LOG))
            logger.addHandler(handler)

    return logger


class ValidationLogger:
    """
    Classe para recolher mensagens de validação (formulários, configuração).

    Mantém uma lista de entradas de log, cada uma contendo nível, mensagem e contexto.
    Cada entrada é também enviada para o logger `comissoes.validacao`.
    """

    _NIVEIS = {"INFO": logging.INFO, "AVISO": logging.WARNING, "ERRO": logging.ERROR}

    def __init__(self):
        """Inicializa o logger com uma lista vazia de logs."""
        self.validation_log: List[Dict[str, str]] = []
        self._logger = logging.getLogger("comissoes.validacao")

    def log(self, nivel: str, mensagem: str, contexto: Optional[Dict] = None):
        """
        Adiciona uma entrada ao log de validação.

        Args:
            nivel: Nível do log (ex: "INFO", "AVISO", "ERRO")
            mensagem: Mensagem descritiva do log
            contexto: Dicionário opcional com informações adicionais de contexto
        """
        self.validation_log.append(
            {"Nível": nivel, "Mensagem": mensagem, "Contexto": str(contexto) if contexto else ""}
        )
        self._logger.log(self._NIVEIS.get(nivel, logging.INFO), "[VALIDACAO] %s", mensagem)

    def info(self, mensagem: str, contexto: Optional[Dict] = None):
        self.log("INFO", mensagem, contexto)

    def aviso(self, mensagem: str, contexto: Optional[Dict] = None):
        self.log("AVISO", mensagem, contexto)

    def erro(self, mensagem: str, contexto: Optional[Dict] = None):
        self.log("ERRO", mensagem, contexto)

    def get_logs(self) -> List[Dict[str, str]]:
        """
        Retorna a lista completa de logs de validação.

        Returns:
            Lista de dicionários, cada um contendo "Nível", "Mensagem" e "Contexto"
        """
        return self.validation_log.copy()

    def get_logs_por_nivel(self, nivel: str) -> List[Dict[str, str]]:
        return [entrada for entrada in self.validation_log if entrada["Nível"] == nivel]

    def clear(self):
        """Limpa todos os logs armazenados."""
        self.validation_log.clear()

    def __len__(self) -> int:
        return len(self.validation_log)
