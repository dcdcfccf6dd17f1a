"""
Developer tools for re-scoring exported submissions.
"""
