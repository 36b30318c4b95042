"""HTTP transport for the generated GraphQL API"""
