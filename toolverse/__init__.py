"""
ToolVerse AI - document tools and generative helpers behind one API
"""
__version__ = "1.0.0"
