"""
Módulo para carregar os parâmetros de configuração.
Lê a aba PARAMS de um ficheiro Excel (ou PARAMS.csv) e aplica por cima as
variáveis de ambiente COMISSOES_* (incluindo as de um ficheiro .env).
"""

import logging
import os
from typing import Any, Dict, Optional

import pandas as pd
from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, Field, ValidationError


logger = logging.getLogger(__name__)

PREFIXO_ENV = "COMISSOES_"


class Configuracao(BaseModel):
    """Parâmetros do motor de comissões."""

    dias_alerta_cobranca: int = Field(default=30, ge=0)
    limite_divergencia_percentagem: float = Field(default=5.0, ge=0)
    limite_divergencia_valor: float = Field(default=5.0, ge=0)
    meses_previsao: int = Field(default=3, ge=1)
    meses_evolucao: int = Field(default=6, ge=1)
    meses_opcoes_periodo: int = Field(default=6, ge=1)
    ficheiro_dados: str = "dados/COMISSOES.xlsx"
    ficheiro_log: str = "comissoes.log"


class ConfigLoader:
    """
    Classe para carregar e processar os parâmetros de configuração.
    """

    def __init__(self, validation_logger=None):
        """
        Inicializa o ConfigLoader.

        Args:
            validation_logger: Instância opcional de ValidationLogger para registar avisos/erros
        """
        self.validation_logger = validation_logger

    def _aviso(self, mensagem: str, contexto: Optional[Dict] = None):
        if self.validation_logger is not None:
            self.validation_logger.aviso(mensagem, contexto or {})
        else:
            logger.warning(mensagem)

    def load_params(self, config_path: str = "config/PARAMETROS.xlsx") -> pd.DataFrame:
        """
        Carrega a aba PARAMS.

        Tenta o ficheiro Excel primeiro; se não existir ou falhar, tenta
        PARAMS.csv na mesma pasta.

        Args:
            config_path: Caminho para o ficheiro Excel

        Returns:
            DataFrame com colunas 'chave' e 'valor' (vazio se nada for encontrado)
        """
        if os.path.exists(config_path):
            try:
                return self._normalizar(pd.read_excel(config_path, sheet_name="PARAMS", engine="openpyxl"))
            except (OSError, ValueError, KeyError) as e:
                self._aviso(
                    f"Falha ao carregar {config_path}: {e}. A tentar PARAMS.csv.",
                    {"path": config_path},
                )
        else:
            self._aviso(
                f"Ficheiro {config_path} não encontrado. A tentar PARAMS.csv.",
                {"path": config_path},
            )

        csv_path = os.path.join(os.path.dirname(config_path) or ".", "PARAMS.csv")
        if os.path.exists(csv_path):
            try:
                return self._normalizar(pd.read_csv(csv_path))
            except (OSError, ValueError) as e:
                self._aviso(f"Falha ao carregar {csv_path}: {e}", {"path": csv_path})
        else:
            self._aviso(f"Ficheiro {csv_path} não encontrado. A usar valores por omissão.", {"path": csv_path})

        return pd.DataFrame(columns=["chave", "valor"])

    def _normalizar(self, df: pd.DataFrame) -> pd.DataFrame:
        df.columns = df.columns.astype(str).str.strip().str.lower()
        if not {"chave", "valor"}.issubset(df.columns):
            self._aviso("Aba PARAMS sem colunas 'chave' e 'valor'", {"colunas": list(df.columns)})
            return pd.DataFrame(columns=["chave", "valor"])

        df = df.dropna(subset=["chave"]).copy()
        df["chave"] = df["chave"].astype(str).str.strip()
        df["valor"] = df["valor"].map(lambda v: v.strip() if isinstance(v, str) else v)
        return df

    def process_params(self, params_df: pd.DataFrame) -> Dict[str, Any]:
        """
        Processa o DataFrame PARAMS e converte para dicionário.

        Args:
            params_df: DataFrame com colunas 'chave' e 'valor'

        Returns:
            Dicionário com os parâmetros preenchidos
        """
        if params_df.empty:
            return {}

        params = pd.Series(params_df.valor.values, index=params_df.chave).to_dict()
        return {chave: valor for chave, valor in params.items() if not pd.isna(valor)}

    def load_env(self, dotenv_path: Optional[str] = None) -> Dict[str, str]:
        """
        Lê as variáveis COMISSOES_* do ficheiro .env e do ambiente.

        As variáveis de ambiente prevalecem sobre as do ficheiro .env.

        Returns:
            Dicionário {campo: valor} (sem o prefixo, em minúsculas)
        """
        caminho = dotenv_path if dotenv_path is not None else find_dotenv(usecwd=True)
        valores = dict(dotenv_values(caminho)) if caminho and os.path.isfile(caminho) else {}
        valores.update(os.environ)

        return {
            chave[len(PREFIXO_ENV):].lower(): valor
            for chave, valor in valores.items()
            if chave.startswith(PREFIXO_ENV) and chave[len(PREFIXO_ENV):].lower() in Configuracao.model_fields
            and valor is not None
        }

    def carregar(
        self, config_path: str = "config/PARAMETROS.xlsx", dotenv_path: Optional[str] = None
    ) -> Configuracao:
        """
        Constrói a configuração: valores por omissão, depois PARAMS, depois ambiente.

        Valores inválidos são registados como erro e substituídos pelo valor
        por omissão.

        Returns:
            Configuracao
        """
        params = self.process_params(self.load_params(config_path))

        desconhecidas = sorted(set(params) - set(Configuracao.model_fields))
        if desconhecidas:
            self._aviso(f"Parâmetros desconhecidos ignorados: {desconhecidas}", {"chaves": desconhecidas})

        dados = {chave: valor for chave, valor in params.items() if chave in Configuracao.model_fields}
        dados.update(self.load_env(dotenv_path))

        try:
            return Configuracao.model_validate(dados)
        except ValidationError as e:
            invalidos = {erro["loc"][0] for erro in e.errors() if erro["loc"]}
            for campo in sorted(invalidos):
                mensagem = f"Valor inválido para '{campo}': {dados.get(campo)!r}. A usar valor por omissão."
                if self.validation_logger is not None:
                    self.validation_logger.erro(mensagem, {"campo": campo})
                else:
                    logger.error(mensagem)
            return Configuracao.model_validate(
                {chave: valor for chave, valor in dados.items() if chave not in invalidos}
            )
