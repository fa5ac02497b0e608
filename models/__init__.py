"""
資料模型模組
"""

# 避免循環導入，使用延遲導入
__all__ = ['RawEntry', 'AggregatedStat', 'ConnectionBucket', 'AnalysisMetadata', 'CurrentAnalysis']
