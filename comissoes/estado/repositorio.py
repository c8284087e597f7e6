"""
Repositório de registos em memória, persistível num ficheiro Excel.

Mantém uma tabela (DataFrame) por coleção. Cada registo entra e sai como
modelo pydantic, pelo que o esquema é validado na fronteira do repositório.
"""

import json
import logging
import os
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type

import pandas as pd
from pydantic import BaseModel, ValidationError

from comissoes.calculos.totais import recalcular_totais_venda
from comissoes.erros import ClienteComVendas, RegistoNaoEncontrado
from comissoes.modelos import (
    Alerta,
    Cliente,
    LinhaVenda,
    PagamentoRecebido,
    TipoAlerta,
    TipoArtigo,
    Venda,
)


logger = logging.getLogger(__name__)


COLECOES: Dict[str, Type[BaseModel]] = {
    "tipos_artigo": TipoArtigo,
    "clientes": Cliente,
    "vendas": Venda,
    "linhas_venda": LinhaVenda,
    "pagamentos_recebidos": PagamentoRecebido,
    "alertas": Alerta,
}

# colunas guardadas como JSON no Excel
COLUNAS_JSON: Dict[str, List[str]] = {
    "vendas": ["periodo_comissao_recebida"],
    "alertas": ["dados_contexto"],
}


def _limpar_valor(valor: Any) -> Any:
    if isinstance(valor, (dict, list, str, bool)):
        return valor
    if valor is None or pd.isna(valor):
        return None
    return valor


def _valor_filtro(valor: Any) -> Any:
    return valor.value if isinstance(valor, Enum) else valor


def _texto(valor: Any) -> Optional[str]:
    # células de texto lidas sem inferência numérica (NIF, telefone, nº de fatura)
    if valor is None or valor == "":
        return None
    if isinstance(valor, float) and valor.is_integer():
        valor = int(valor)
    return str(valor)


def _colunas_texto(modelo: Type[BaseModel]) -> List[str]:
    return [nome for nome, campo in modelo.model_fields.items() if campo.annotation in (str, Optional[str])]


class RepositorioRegistos:
    """
    Guarda tipos de artigo, clientes, vendas, linhas, pagamentos e alertas.

    Todas as coleções exceto `linhas_venda` têm dono (`utilizador_id`); as
    linhas pertencem ao dono da venda.
    """

    def __init__(self):
        """Inicializa o repositório com tabelas vazias."""
        self.tabelas: Dict[str, pd.DataFrame] = {
            nome: pd.DataFrame(columns=list(modelo.model_fields)) for nome, modelo in COLECOES.items()
        }

    # =====================================================
    # CONVERSÕES
    # =====================================================

    def _modelo(self, colecao: str) -> Type[BaseModel]:
        if colecao not in COLECOES:
            raise KeyError(f"Coleção desconhecida: {colecao}")
        return COLECOES[colecao]

    def _para_registo(self, colecao: str, linha: Dict[str, Any]) -> BaseModel:
        dados = {chave: _limpar_valor(valor) for chave, valor in linha.items()}
        return self._modelo(colecao).model_validate(dados)

    def _registos(self, colecao: str, df: pd.DataFrame) -> List[BaseModel]:
        return [self._para_registo(colecao, linha) for linha in df.to_dict("records")]

    def _definir_tabela(self, colecao: str, linhas: List[Dict[str, Any]]):
        colunas = list(self._modelo(colecao).model_fields)
        self.tabelas[colecao] = pd.DataFrame(linhas, columns=colunas)

    # =====================================================
    # OPERAÇÕES CRUD
    # =====================================================

    def inserir(self, colecao: str, registo: BaseModel) -> BaseModel:
        """
        Insere um registo novo.

        Raises:
            ValueError: se já existir um registo com o mesmo id
        """
        modelo = self._modelo(colecao)
        registo = modelo.model_validate(registo.model_dump())

        df = self.tabelas[colecao]
        if not df.empty and (df["id"] == registo.id).any():
            raise ValueError(f"Registo '{registo.id}' já existe em '{colecao}'")

        linhas = df.to_dict("records")
        linhas.append(registo.model_dump(mode="json"))
        self._definir_tabela(colecao, linhas)

        logger.debug("[REPOSITORIO] Inserido %s em %s", registo.id, colecao)
        return registo

    def obter(self, colecao: str, registo_id: str, utilizador_id: Optional[str] = None) -> BaseModel:
        """
        Devolve o registo com o id indicado.

        Raises:
            RegistoNaoEncontrado: se não existir ou pertencer a outro utilizador
        """
        self._modelo(colecao)
        df = self.tabelas[colecao]

        mask = df["id"] == registo_id
        if not mask.any():
            raise RegistoNaoEncontrado(colecao, registo_id)

        registo = self._para_registo(colecao, df[mask].to_dict("records")[0])
        if utilizador_id is not None and self._dono(colecao, registo) != utilizador_id:
            raise RegistoNaoEncontrado(colecao, registo_id)
        return registo

    def atualizar(self, colecao: str, registo_id: str, **campos) -> BaseModel:
        """
        Atualiza campos de um registo existente (validando o resultado).

        Returns:
            Registo atualizado
        """
        atual = self.obter(colecao, registo_id)
        dados = atual.model_dump()
        dados.update(campos)
        novo = self._modelo(colecao).model_validate(dados)

        linhas = [
            novo.model_dump(mode="json") if linha["id"] == registo_id else linha
            for linha in self.tabelas[colecao].to_dict("records")
        ]
        self._definir_tabela(colecao, linhas)
        return novo

    def substituir(self, colecao: str, registo: BaseModel) -> BaseModel:
        """Grava um registo completo por cima do existente com o mesmo id."""
        campos = registo.model_dump()
        registo_id = campos.pop("id")
        return self.atualizar(colecao, registo_id, **campos)

    def eliminar(self, colecao: str, registo_id: str, utilizador_id: Optional[str] = None):
        """
        Elimina um registo.

        Eliminar uma venda elimina as suas linhas. Um cliente com vendas não
        pode ser eliminado.

        Raises:
            RegistoNaoEncontrado: registo inexistente
            ClienteComVendas: cliente ainda referenciado por vendas
        """
        self.obter(colecao, registo_id, utilizador_id)

        if colecao == "clientes":
            total = self.contar_vendas_cliente(registo_id)
            if total:
                raise ClienteComVendas(registo_id, total)

        if colecao == "vendas":
            self._eliminar_onde("linhas_venda", "venda_id", registo_id)

        self._eliminar_onde(colecao, "id", registo_id)
        logger.debug("[REPOSITORIO] Eliminado %s de %s", registo_id, colecao)

    def _eliminar_onde(self, colecao: str, coluna: str, valor: Any):
        df = self.tabelas[colecao]
        if df.empty:
            return
        self.tabelas[colecao] = df[df[coluna] != valor].reset_index(drop=True)

    def selecionar(
        self,
        colecao: str,
        utilizador_id: Optional[str] = None,
        filtros: Optional[Dict[str, Any]] = None,
        ordenar_por: Optional[str] = None,
        ascendente: bool = True,
    ) -> List[BaseModel]:
        """
        Seleciona registos por igualdade de campos.

        Args:
            colecao: Nome da coleção
            utilizador_id: Dono dos registos (para linhas, o dono da venda)
            filtros: {campo: valor}; um valor lista/tuplo/conjunto significa "um de"
            ordenar_por: Campo de ordenação
            ascendente: Direção da ordenação

        Returns:
            Lista de modelos
        """
        self._modelo(colecao)
        df = self.tabelas[colecao]
        if df.empty:
            return []

        mask = pd.Series(True, index=df.index)

        if utilizador_id is not None:
            if colecao == "linhas_venda":
                vendas = self.tabelas["vendas"]
                ids_vendas = vendas.loc[vendas["utilizador_id"] == utilizador_id, "id"].tolist()
                mask &= df["venda_id"].isin(ids_vendas)
            else:
                mask &= df["utilizador_id"] == utilizador_id

        for campo, valor in (filtros or {}).items():
            if isinstance(valor, (list, tuple, set)):
                mask &= df[campo].isin([_valor_filtro(v) for v in valor])
            else:
                mask &= df[campo] == _valor_filtro(valor)

        resultado = df[mask]
        if ordenar_por:
            resultado = resultado.sort_values(ordenar_por, ascending=ascendente, kind="stable")

        return self._registos(colecao, resultado)

    def _dono(self, colecao: str, registo: BaseModel) -> Optional[str]:
        if colecao == "linhas_venda":
            vendas = self.tabelas["vendas"]
            dono = vendas.loc[vendas["id"] == registo.venda_id, "utilizador_id"]
            return dono.iloc[0] if not dono.empty else None
        return getattr(registo, "utilizador_id", None)

    # =====================================================
    # CONSULTAS ESPECÍFICAS
    # =====================================================

    def existe_alerta_nao_lido(
        self,
        utilizador_id: str,
        tipo: TipoAlerta,
        campo_contexto: Optional[str] = None,
        valor: Any = None,
    ) -> bool:
        """
        Verifica se já existe um alerta não lido do tipo indicado.

        Com `campo_contexto`, só conta alertas cujo contexto tem esse campo
        igual a `valor` (ex.: venda_id).
        """
        alertas = self.selecionar(
            "alertas", utilizador_id=utilizador_id, filtros={"tipo": tipo, "lido": False}
        )
        if campo_contexto is None:
            return bool(alertas)
        return any(alerta.dados_contexto.get(campo_contexto) == valor for alerta in alertas)

    def contar_vendas_cliente(self, cliente_id: str) -> int:
        vendas = self.tabelas["vendas"]
        return int((vendas["cliente_id"] == cliente_id).sum()) if not vendas.empty else 0

    def substituir_linhas_venda(
        self, venda_id: str, linhas: Iterable[LinhaVenda], **campos_venda: Any
    ) -> Tuple[Venda, List[LinhaVenda]]:
        """
        Substitui todas as linhas de uma venda e recalcula os seus totais.

        Os campos do cabeçalho indicados, as linhas e os totais mudam em
        conjunto: se algum passo falhar, o estado anterior é reposto e a
        exceção é propagada.

        Returns:
            (venda com totais atualizados, linhas gravadas)
        """
        copia = {nome: df.copy() for nome, df in self.tabelas.items()}
        try:
            if campos_venda:
                self.atualizar("vendas", venda_id, **campos_venda)
            venda = self.obter("vendas", venda_id)
            venda_calculada, linhas_calculadas = recalcular_totais_venda(venda, linhas)

            self._eliminar_onde("linhas_venda", "venda_id", venda_id)
            for linha in linhas_calculadas:
                self.inserir("linhas_venda", linha)
            venda_gravada = self.substituir("vendas", venda_calculada)
        except Exception:
            self.tabelas = copia
            logger.warning("[REPOSITORIO] Substituição de linhas da venda %s revertida", venda_id)
            raise

        logger.info(
            "[REPOSITORIO] Venda %s: %d linha(s), comissão total %.2f",
            venda_id,
            len(linhas_calculadas),
            venda_gravada.comissao_total,
        )
        return venda_gravada, linhas_calculadas

    # =====================================================
    # PERSISTÊNCIA
    # =====================================================

    def guardar(self, filepath: str):
        """
        Grava todas as coleções num ficheiro Excel (uma folha por coleção).

        Args:
            filepath: Caminho do ficheiro .xlsx
        """
        os.makedirs(os.path.dirname(filepath) if os.path.dirname(filepath) else ".", exist_ok=True)

        with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
            for colecao, df in self.tabelas.items():
                df_saida = df.copy()
                for coluna in COLUNAS_JSON.get(colecao, []):
                    df_saida[coluna] = df_saida[coluna].map(
                        lambda v: json.dumps(v, ensure_ascii=False) if isinstance(v, (dict, list)) else v
                    )
                df_saida.to_excel(writer, sheet_name=colecao, index=False)

        logger.info("[REPOSITORIO] Estado gravado em %s", filepath)

    def carregar(self, filepath: str) -> bool:
        """
        Carrega as coleções de um ficheiro gravado por `guardar`.

        Folhas em falta ficam vazias. Se o ficheiro não existir ou for
        inválido, o estado atual mantém-se.

        Returns:
            True se carregou com sucesso, False caso contrário
        """
        if not os.path.exists(filepath):
            logger.warning("[REPOSITORIO] Ficheiro %s não encontrado", filepath)
            return False

        try:
            novas: Dict[str, pd.DataFrame] = {}

            with pd.ExcelFile(filepath, engine="openpyxl") as livro:
                folhas = {}
                for colecao, modelo in COLECOES.items():
                    if colecao not in livro.sheet_names:
                        continue
                    cabecalho = [str(c).strip() for c in livro.parse(colecao, nrows=0).columns]
                    conversores = {c: _texto for c in _colunas_texto(modelo) if c in cabecalho}
                    folhas[colecao] = livro.parse(colecao, converters=conversores)

            for colecao, modelo in COLECOES.items():
                df = folhas.get(colecao, pd.DataFrame(columns=list(modelo.model_fields)))
                df.columns = df.columns.astype(str).str.strip()

                for coluna in COLUNAS_JSON.get(colecao, []):
                    if coluna in df.columns:
                        df[coluna] = df[coluna].map(
                            lambda v: json.loads(v) if isinstance(v, str) and v.strip() else None
                        )

                # valida cada linha e normaliza para o formato interno
                registos = [self._para_registo(colecao, linha) for linha in df.to_dict("records")]
                novas[colecao] = pd.DataFrame(
                    [r.model_dump(mode="json") for r in registos], columns=list(modelo.model_fields)
                )
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("[REPOSITORIO] Falha ao carregar %s: %s", filepath, e)
            return False

        self.tabelas = novas
        logger.info("[REPOSITORIO] Estado carregado de %s", filepath)
        return True


__all__ = ["RepositorioRegistos", "COLECOES"]
