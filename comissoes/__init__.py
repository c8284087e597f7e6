"""
Motor de comissões por venda.

Regista faturas e as suas linhas, calcula lucro e comissão por linha,
acompanha a boa cobrança e a liquidação das comissões e produz os resumos
do painel e dos relatórios.
"""

__version__ = "2.0.0"
