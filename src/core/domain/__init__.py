"""Dominio de cálculo de emisiones.

Por qué:
- Modelos Pydantic v2 del request, del leg normalizado y del resultado.
- Errores tipados y extracción numérica tolerante; nada de HTTP ni XML aquí.
"""
