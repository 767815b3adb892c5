"""
Configuration and operator interaction: static defaults, settings models,
the settings loader and the interactive prompts.
"""
