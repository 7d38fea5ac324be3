"""Console families and the wire details that differ between them."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SceneEncoding:
    """How a family addresses scene recall/query commands.

    ``bank_in_address`` families append the scene bank letter straight onto the
    address token (``MIXER:Lib/Bank/Scenea``) and report it back the same way.
    Numeric banks are never appended.
    """

    bank_in_address: bool = False

    def address_token(self, address: str, bank: Optional[object]) -> str:
        if self.bank_in_address and isinstance(bank, str) and bank:
            return f"{address}{bank}"
        return address


@dataclass(frozen=True)
class ConsoleFamily:
    model: str
    label: str
    parameter_file: str
    scene_encoding: SceneEncoding


PLAIN_SCENES = SceneEncoding()
BANKED_SCENES = SceneEncoding(bank_in_address=True)

FAMILIES = {
    "CL/QL": ConsoleFamily("CL/QL", "CL/QL Console", "cl_parameters.txt", PLAIN_SCENES),
    "TF": ConsoleFamily("TF", "TF Console", "tf_parameters.txt", BANKED_SCENES),
    "PM": ConsoleFamily("PM", "Rivage Console", "pm_parameters.txt", BANKED_SCENES),
}

DEFAULT_MODEL = "CL/QL"


def family_for(model: str) -> Optional[ConsoleFamily]:
    return FAMILIES.get(model)


def scene_encoding_for(model: str) -> SceneEncoding:
    family = FAMILIES.get(model)
    return family.scene_encoding if family else PLAIN_SCENES
