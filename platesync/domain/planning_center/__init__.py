"""Planning Center People integration"""
