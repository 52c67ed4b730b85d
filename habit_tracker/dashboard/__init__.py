"""
HTTP дашборд трекера привычек (FastAPI)
"""
