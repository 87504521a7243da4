"""Business domains: router, service, repository and schemas per area"""
