__version__ = "0.9.0"
__description__ = "jadoc : declarative JSON:API resource schemas and compound document serialization"
