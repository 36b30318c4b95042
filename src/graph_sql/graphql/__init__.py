"""GraphQL surface generated from the catalog"""
