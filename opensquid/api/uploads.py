from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from opensquid.core.auth import require_roles, TokenData
from opensquid.services import uploads

router = APIRouter()

@router.post("/images", status_code=201)
def upload_image(file: UploadFile = File(...), user: TokenData = Depends(require_roles("user", "admin"))):
  try:
    url = uploads.store_image(file.file, file.filename, file.content_type, user.sub)
  except uploads.UnsupportedImageError as e:
    raise HTTPException(400, str(e))
  except uploads.ImageTooLargeError as e:
    raise HTTPException(413, str(e))
  return {"url": url, "uploaded_by": user.sub}
