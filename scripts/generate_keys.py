"""
Genera el par de claves RSA usado para firmar los JWT (RS256).

    python scripts/generate_keys.py [--dir keys] [--force]

Con JWT_ALGORITHM=HS256 no hace falta: basta JWT_SECRET_KEY.
"""

import argparse
import sys
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa


def write_key_pair(keys_dir: Path, force: bool = False) -> tuple[Path, Path]:
    keys_dir.mkdir(parents=True, exist_ok=True)
    private_key_path = keys_dir / "private.pem"
    public_key_path = keys_dir / "public.pem"

    if private_key_path.exists() and not force:
        raise FileExistsError(f"Las claves ya existen en {keys_dir}; use --force para regenerarlas")

    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_key_path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    public_key_path.write_bytes(
        private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return private_key_path, public_key_path


def main() -> int:
    parser = argparse.ArgumentParser(description="Genera las claves RS256 para JWT")
    parser.add_argument("--dir", default=str(Path(__file__).resolve().parent.parent / "keys"))
    parser.add_argument("--force", action="store_true", help="Sobrescribir claves existentes")
    args = parser.parse_args()

    try:
        private_path, public_path = write_key_pair(Path(args.dir), force=args.force)
    except FileExistsError as exc:
        print(exc)
        return 1

    print(f"Clave privada: {private_path}")
    print(f"Clave pública: {public_path}")
    print("\nAgregue a su .env:")
    print(f"   JWT_PRIVATE_KEY_PATH={private_path}")
    print(f"   JWT_PUBLIC_KEY_PATH={public_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
