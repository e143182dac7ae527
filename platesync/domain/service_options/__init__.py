"""Service options - named worship services a batch is collected at"""
