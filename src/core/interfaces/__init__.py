"""Puertos del Core (Protocol).

Por qué:
- Resolver ubicaciones y persistir cálculos son servicios externos
  intercambiables: Nominatim/Supabase en producción, fakes en tests.
"""
