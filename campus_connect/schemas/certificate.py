from typing import Optional

from pydantic import BaseModel

from ..models import CertificateType


class GenerateCertificateForm(BaseModel):
    activity_id: Optional[int] = None
    student_id: Optional[int] = None
    certificate_type: CertificateType = CertificateType.PARTICIPATION
