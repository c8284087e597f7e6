"""
Converte o resultado (já confirmado pelo utilizador) da extração de uma fatura
em linhas de venda em rascunho.

Cada item vira uma linha pelo método manual:
lucro_manual = preco_unitario - preco_custo (custo 0 se não indicado).
"""

import logging
from datetime import date
from typing import List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from comissoes.calculos.lucro import DadosCalculoLucro, validar_dados_calculo
from comissoes.calculos.totais import aplicar_snapshot_tipo, recalcular_linha
from comissoes.modelos import Cliente, LinhaVenda, MetodoCalculo, TipoArtigo
from comissoes.utils.normalization import normalize_text


logger = logging.getLogger(__name__)


class ItemExtraido(BaseModel):
    artigo: str = ""
    quantidade: Optional[float] = None
    preco_unitario: float = 0.0
    preco_custo: Optional[float] = None
    tipo_sugerido: Optional[str] = None

    @field_validator("artigo", mode="before")
    @classmethod
    def _artigo_texto(cls, valor):
        return "" if valor is None else str(valor).strip()

    @field_validator("preco_unitario", mode="before")
    @classmethod
    def _preco_zero(cls, valor):
        return 0.0 if valor is None else valor


class CandidatoExtracao(BaseModel):
    numero_fatura: Optional[str] = None
    data: Optional[date] = None
    cliente_nome: Optional[str] = None
    itens: List[ItemExtraido] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def _data_vazia(cls, valor):
        return None if valor in ("", None) else valor


def corresponder_cliente(nome: Optional[str], clientes: Sequence[Cliente]) -> Optional[Cliente]:
    """
    Procura o cliente cujo nome contém (ou está contido em) `nome`,
    ignorando maiúsculas e acentos.
    """
    alvo = normalize_text(nome)
    if not alvo:
        return None

    for cliente in clientes:
        nome_cliente = normalize_text(cliente.nome)
        if nome_cliente and (alvo in nome_cliente or nome_cliente in alvo):
            return cliente
    return None


def corresponder_tipo(item: ItemExtraido, tipos: Sequence[TipoArtigo]) -> Optional[TipoArtigo]:
    """
    Escolhe o tipo de artigo de um item entre os tipos ativos.

    Corresponde quando o nome do tipo contém o tipo sugerido ou o nome do
    artigo contém o nome do tipo. Sem correspondência, usa o primeiro tipo ativo.

    Returns:
        TipoArtigo, ou None se não houver tipos ativos
    """
    ativos = [tipo for tipo in tipos if tipo.ativo]
    if not ativos:
        return None

    sugerido = normalize_text(item.tipo_sugerido)
    artigo = normalize_text(item.artigo)

    for tipo in ativos:
        nome_tipo = normalize_text(tipo.nome)
        if (sugerido and sugerido in nome_tipo) or (nome_tipo and nome_tipo in artigo):
            return tipo

    return ativos[0]


def mapear_linhas(
    candidato: CandidatoExtracao,
    venda_id: str,
    tipos: Sequence[TipoArtigo],
    validation_logger=None,
) -> List[LinhaVenda]:
    """
    Gera as linhas em rascunho a partir dos itens extraídos.

    Itens sem quantidade válida são ignorados. Linhas com dados inválidos
    (ex.: preço unitário abaixo do custo) ficam por calcular, com o aviso
    registado no validation_logger.

    Args:
        candidato: Resultado da extração confirmado pelo utilizador
        venda_id: Venda a que as linhas pertencem
        tipos: Tipos de artigo do utilizador
        validation_logger: ValidationLogger opcional

    Returns:
        Lista de LinhaVenda

    Raises:
        ValueError: se houver itens mas nenhum tipo de artigo ativo
    """
    linhas: List[LinhaVenda] = []

    for posicao, item in enumerate(candidato.itens, start=1):
        if item.quantidade is None or item.quantidade <= 0:
            if validation_logger is not None:
                validation_logger.aviso(
                    f"Item {posicao} ('{item.artigo}') ignorado: quantidade inválida",
                    {"item": posicao, "quantidade": item.quantidade},
                )
            continue

        tipo = corresponder_tipo(item, tipos)
        if tipo is None:
            raise ValueError("Não existem tipos de artigo ativos para associar às linhas extraídas")

        preco_custo = item.preco_custo or 0.0
        linha = aplicar_snapshot_tipo(
            LinhaVenda(
                venda_id=venda_id,
                artigo=item.artigo,
                tipo_artigo_id=tipo.id,
                quantidade=item.quantidade,
                metodo_calculo=MetodoCalculo.MANUAL,
                preco_custo=preco_custo,
                lucro_manual=item.preco_unitario - preco_custo,
                percentagem_desconto=0.0,
            ),
            tipo,
        )

        validacao = validar_dados_calculo(DadosCalculoLucro.da_linha(linha), validation_logger)
        linhas.append(recalcular_linha(linha) if validacao.valido else linha)

    logger.info("[EXTRACAO] %d linha(s) geradas de %d item(ns)", len(linhas), len(candidato.itens))
    return linhas
