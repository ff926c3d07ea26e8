"""Servicios del Core: orquestación del codec y operaciones sobre el agregado."""
