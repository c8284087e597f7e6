"""
Entrada de dados: parâmetros de configuração e mapeamento de faturas extraídas.
"""
