from app.config import settings
from app.services.company import DefaultCompanyResolver

def get_company_resolver() -> DefaultCompanyResolver:
    # tests override this to pin the default company
    return DefaultCompanyResolver(settings.DEFAULT_COMPANY_ID)
