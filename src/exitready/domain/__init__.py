"""
ExitReady Domain Layer

Pure calculation services and the value objects they exchange.
"""
