"""
Constantes Globais do Sistema.
Fonte Única da Verdade para as taxonomias fixas do catálogo de atividades.
"""

TAMANHOS_GRUPO = {
    'small': {'pt': 'Pequeno', 'en': 'Small'},
    'medium': {'pt': 'Médio', 'en': 'Medium'},
    'large': {'pt': 'Grande', 'en': 'Large'},
}

NIVEIS_ESFORCO = {
    'low': {'pt': 'Baixo', 'en': 'Low'},
    'medium': {'pt': 'Médio', 'en': 'Medium'},
    'high': {'pt': 'Alto', 'en': 'High'},
}

LOCAIS = {
    'inside': {'pt': 'Interior', 'en': 'Inside'},
    'outside': {'pt': 'Exterior', 'en': 'Outside'},
}

# Secções do escutismo
FAIXAS_ETARIAS = {
    'cub_scouts': {'pt': 'Lobitos', 'en': 'Cub Scouts'},
    'scouts': {'pt': 'Exploradores', 'en': 'Scouts'},
    'adventurers': {'pt': 'Pioneiros', 'en': 'Adventurers'},
    'rovers': {'pt': 'Caminheiros', 'en': 'Rovers'},
    'leaders': {'pt': 'Dirigentes', 'en': 'Leaders'},
}

ROLES = ('user', 'admin')

PAGINA_PADRAO = 20
PAGINA_MAXIMA = 100

FORMATOS_IMAGEM = {
    'image/jpeg': b'\xff\xd8\xff',
    'image/png': b'\x89PNG',
    'image/webp': b'RIFF',
}

# Rótulos do export CSV
COLUNAS_EXPORTACAO = {
    'pt': ['Posição', 'Início', 'Fim', 'Tipo', 'Título', 'Duração (min)', 'Grupo', 'Esforço', 'Local'],
    'en': ['Position', 'Start', 'End', 'Type', 'Title', 'Duration (min)', 'Group size', 'Effort', 'Location'],
}

TIPOS_ENTRADA = {
    'activity': {'pt': 'Atividade', 'en': 'Activity'},
    'custom': {'pt': 'Bloco', 'en': 'Custom block'},
}
