"""Instruction templates."""
