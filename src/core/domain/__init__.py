"""Dominio CEP-78: referencias on-chain, constantes del contrato y errores.

Sin HTTP ni SDK: hashes, claves y tokens se validan aquí (Pydantic v2) antes de
llegar al nodo.
"""
