"""Type inference and in-memory structured query execution"""
