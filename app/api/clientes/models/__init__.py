from app.api.clientes.models.model_cliente import ClienteModel

__all__ = ["ClienteModel"]
