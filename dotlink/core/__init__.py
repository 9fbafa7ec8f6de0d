"""dotlink 核心模块"""
