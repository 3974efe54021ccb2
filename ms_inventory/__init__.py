"""
MS-INVENTORY-PY - Ciclo de vida de activos serializados
"""
