"""Stateless core endpoints"""
