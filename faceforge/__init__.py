"""
FaceForge: digital human video synthesis orchestrator.
"""
