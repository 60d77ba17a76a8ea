"""
mail — plain-text message construction and the Gmail send gateway.
"""
