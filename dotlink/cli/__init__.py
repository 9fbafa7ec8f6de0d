"""dotlink 命令行界面"""
