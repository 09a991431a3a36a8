"""tinydynamo"""
__version__ = "0.1.0"
__author__ = "tinydynamo contributors"
__author_email__ = ""
