import time, jwt, logging
from passlib.context import CryptContext
from typing import Optional

logger = logging.getLogger(__name__)

JWT_ALG = "HS256"
ACCESS_TTL = 60*60*24
LINK_TTL = 15*60
pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

def hash_password(p:str)->str: return pwd.hash(p)
def verify_password(p, h)->bool: return bool(h) and pwd.verify(p, h)

def create_token(sub:str, secret:str, purpose:str="access", exp:int=ACCESS_TTL):
    payload = {"sub":sub, "purpose":purpose, "exp":int(time.time())+exp}
    return jwt.encode(payload, secret, algorithm=JWT_ALG)

def decode_token(token:str, secret:str, purpose:str="access")->Optional[dict]:
    try:
        payload = jwt.decode(token, secret, algorithms=[JWT_ALG])
    except jwt.PyJWTError:
        return None
    if payload.get("purpose") != purpose:
        return None
    return payload

def deliver_link(email:str, purpose:str, link:str) -> None:
    # no mail transport, links go to the log
    logger.info("%s link for %s: %s", purpose, email, link)
