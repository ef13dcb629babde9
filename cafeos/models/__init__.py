from cafeos.models.document import Document
