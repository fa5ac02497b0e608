"""
分析核心模組
"""
