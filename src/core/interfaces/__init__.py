"""Interfaces/abstracciones del Core.

Por qué:
- Define contratos (Protocol) para el cliente remoto de vaults y para el
  sumidero de diagnósticos; los adaptadores concretos los implementan.
- Los servicios dependen solo de estas abstracciones y se testean con fakes.
"""
