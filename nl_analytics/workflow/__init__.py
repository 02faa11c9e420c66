"""LangGraph query pipeline"""
