"""
Resolvers bound into the registry by the schema compiler
"""
